import logging
import os

from dotenv import load_dotenv

# Load Environment Variables (.env in the working directory, if present)
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Used when the settings table has no row yet
DEFAULT_BREAKFAST_PRICE = float(os.getenv("DEFAULT_BREAKFAST_PRICE", "15"))

# Bookings list pagination
PAGE_SIZE = 10

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None):
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
