# Simple logger

import logging
import os
import sys

def setup_logging():
    os.makedirs("logs", exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("logs/batchnet.log")
        ]
    )

setup_logging()

logger = logging.getLogger("batchnet")
