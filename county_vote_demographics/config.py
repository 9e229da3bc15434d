import os
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Load environment variables from .env file if it exists
load_dotenv()

# Paths
PROJ_ROOT = Path(__file__).resolve().parents[1]
logger.info(f"PROJ_ROOT path is: {PROJ_ROOT}")

DATA_DIR = Path(os.getenv("COUNTY_VOTES_DATA_DIR", PROJ_ROOT / "data"))
RAW_DATA_DIR = DATA_DIR / "raw"
PROCESSED_DATA_DIR = DATA_DIR / "processed"

REPORTS_DIR = Path(os.getenv("COUNTY_VOTES_REPORTS_DIR", PROJ_ROOT / "reports"))
MODEL_REPORTS_DIR = REPORTS_DIR / "models"

CENSUS_CSV = RAW_DATA_DIR / "acs2015_census_tract_data.csv"
ELECTION_CSV = RAW_DATA_DIR / "election_2016_county.csv"

WAREHOUSE_DB = Path(os.getenv("COUNTY_VOTES_DB", PROCESSED_DATA_DIR / "county_votes.duckdb"))

LOG_LEVEL = os.getenv("COUNTY_VOTES_LOG_LEVEL", "INFO").upper()

# If tqdm is installed, configure loguru with tqdm.write
# https://github.com/Delgan/loguru/issues/135
try:
    from tqdm import tqdm

    logger.remove(0)
    logger.add(lambda msg: tqdm.write(msg, end=""), colorize=True, level=LOG_LEVEL)
except (ModuleNotFoundError, ValueError):
    pass
