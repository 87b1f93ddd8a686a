from typing import Iterable, List, Optional

from booking_schemas import Country

FLAG_URL = "https://flagcdn.com/{code}.svg"

_COUNTRY_CODES = [
    ("Afghanistan", "AF"), ("Albania", "AL"), ("Algeria", "DZ"), ("Andorra", "AD"),
    ("Angola", "AO"), ("Antigua and Barbuda", "AG"), ("Argentina", "AR"), ("Armenia", "AM"),
    ("Australia", "AU"), ("Austria", "AT"), ("Azerbaijan", "AZ"), ("Bahamas", "BS"),
    ("Bahrain", "BH"), ("Bangladesh", "BD"), ("Barbados", "BB"), ("Belarus", "BY"),
    ("Belgium", "BE"), ("Belize", "BZ"), ("Benin", "BJ"), ("Bhutan", "BT"),
    ("Bolivia", "BO"), ("Bosnia and Herzegovina", "BA"), ("Botswana", "BW"), ("Brazil", "BR"),
    ("Brunei", "BN"), ("Bulgaria", "BG"), ("Burkina Faso", "BF"), ("Burundi", "BI"),
    ("Cabo Verde", "CV"), ("Cambodia", "KH"), ("Cameroon", "CM"), ("Canada", "CA"),
    ("Central African Republic", "CF"), ("Chad", "TD"), ("Chile", "CL"), ("China", "CN"),
    ("Colombia", "CO"), ("Comoros", "KM"), ("Congo", "CG"), ("Costa Rica", "CR"),
    ("Croatia", "HR"), ("Cuba", "CU"), ("Cyprus", "CY"), ("Czechia", "CZ"),
    ("Democratic Republic of the Congo", "CD"), ("Denmark", "DK"), ("Djibouti", "DJ"),
    ("Dominica", "DM"), ("Dominican Republic", "DO"), ("Ecuador", "EC"), ("Egypt", "EG"),
    ("El Salvador", "SV"), ("Equatorial Guinea", "GQ"), ("Eritrea", "ER"), ("Estonia", "EE"),
    ("Eswatini", "SZ"), ("Ethiopia", "ET"), ("Fiji", "FJ"), ("Finland", "FI"),
    ("France", "FR"), ("Gabon", "GA"), ("Gambia", "GM"), ("Georgia", "GE"),
    ("Germany", "DE"), ("Ghana", "GH"), ("Greece", "GR"), ("Grenada", "GD"),
    ("Guatemala", "GT"), ("Guinea", "GN"), ("Guinea-Bissau", "GW"), ("Guyana", "GY"),
    ("Haiti", "HT"), ("Honduras", "HN"), ("Hungary", "HU"), ("Iceland", "IS"),
    ("India", "IN"), ("Indonesia", "ID"), ("Iran", "IR"), ("Iraq", "IQ"),
    ("Ireland", "IE"), ("Israel", "IL"), ("Italy", "IT"), ("Ivory Coast", "CI"),
    ("Jamaica", "JM"), ("Japan", "JP"), ("Jordan", "JO"), ("Kazakhstan", "KZ"),
    ("Kenya", "KE"), ("Kiribati", "KI"), ("Kuwait", "KW"), ("Kyrgyzstan", "KG"),
    ("Laos", "LA"), ("Latvia", "LV"), ("Lebanon", "LB"), ("Lesotho", "LS"),
    ("Liberia", "LR"), ("Libya", "LY"), ("Liechtenstein", "LI"), ("Lithuania", "LT"),
    ("Luxembourg", "LU"), ("Madagascar", "MG"), ("Malawi", "MW"), ("Malaysia", "MY"),
    ("Maldives", "MV"), ("Mali", "ML"), ("Malta", "MT"), ("Marshall Islands", "MH"),
    ("Mauritania", "MR"), ("Mauritius", "MU"), ("Mexico", "MX"), ("Micronesia", "FM"),
    ("Moldova", "MD"), ("Monaco", "MC"), ("Mongolia", "MN"), ("Montenegro", "ME"),
    ("Morocco", "MA"), ("Mozambique", "MZ"), ("Myanmar", "MM"), ("Namibia", "NA"),
    ("Nauru", "NR"), ("Nepal", "NP"), ("Netherlands", "NL"), ("New Zealand", "NZ"),
    ("Nicaragua", "NI"), ("Niger", "NE"), ("Nigeria", "NG"), ("North Korea", "KP"),
    ("North Macedonia", "MK"), ("Norway", "NO"), ("Oman", "OM"), ("Pakistan", "PK"),
    ("Palau", "PW"), ("Palestine", "PS"), ("Panama", "PA"), ("Papua New Guinea", "PG"),
    ("Paraguay", "PY"), ("Peru", "PE"), ("Philippines", "PH"), ("Poland", "PL"),
    ("Portugal", "PT"), ("Qatar", "QA"), ("Romania", "RO"), ("Russia", "RU"),
    ("Rwanda", "RW"), ("Saint Kitts and Nevis", "KN"), ("Saint Lucia", "LC"),
    ("Saint Vincent and the Grenadines", "VC"), ("Samoa", "WS"), ("San Marino", "SM"),
    ("Sao Tome and Principe", "ST"), ("Saudi Arabia", "SA"), ("Senegal", "SN"), ("Serbia", "RS"),
    ("Seychelles", "SC"), ("Sierra Leone", "SL"), ("Singapore", "SG"), ("Slovakia", "SK"),
    ("Slovenia", "SI"), ("Solomon Islands", "SB"), ("Somalia", "SO"), ("South Africa", "ZA"),
    ("South Korea", "KR"), ("South Sudan", "SS"), ("Spain", "ES"), ("Sri Lanka", "LK"),
    ("Sudan", "SD"), ("Suriname", "SR"), ("Sweden", "SE"), ("Switzerland", "CH"),
    ("Syria", "SY"), ("Taiwan", "TW"), ("Tajikistan", "TJ"), ("Tanzania", "TZ"),
    ("Thailand", "TH"), ("Timor-Leste", "TL"), ("Togo", "TG"), ("Tonga", "TO"),
    ("Trinidad and Tobago", "TT"), ("Tunisia", "TN"), ("Turkey", "TR"), ("Turkmenistan", "TM"),
    ("Tuvalu", "TV"), ("Uganda", "UG"), ("Ukraine", "UA"), ("United Arab Emirates", "AE"),
    ("United Kingdom", "GB"), ("United States", "US"), ("Uruguay", "UY"), ("Uzbekistan", "UZ"),
    ("Vanuatu", "VU"), ("Vatican City", "VA"), ("Venezuela", "VE"), ("Vietnam", "VN"),
    ("Yemen", "YE"), ("Zambia", "ZM"), ("Zimbabwe", "ZW"),
]

# Default reference table. Pass a different one to CountryIndex to swap it out.
COUNTRIES = tuple(
    Country(name=name, code=code, flag=FLAG_URL.format(code=code.lower()))
    for name, code in _COUNTRY_CODES
)


class CountryIndex:
    """
    Read-only lookup over a country table, used for guest nationality.
    search() filters by substring, resolve() maps an exact name to its flag.
    """

    def __init__(self, countries: Iterable[Country] = COUNTRIES):
        self._countries = tuple(countries)
        self._by_name = {c.name.lower(): c for c in self._countries}

    def __len__(self):
        return len(self._countries)

    def search(self, term: Optional[str] = None) -> List[Country]:
        needle = (term or "").strip().lower()
        if not needle:
            return list(self._countries)
        return [c for c in self._countries if needle in c.name.lower()]

    def get(self, name: Optional[str]) -> Optional[Country]:
        if not name:
            return None
        return self._by_name.get(name.strip().lower())

    def resolve(self, name: Optional[str]) -> Optional[str]:
        country = self.get(name)
        return country.flag if country else None
