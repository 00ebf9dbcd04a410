"""
Seed script to populate the Supabase ``Tweets`` table with mock business news
for local development.
"""
import sys
import os

# Add the parent directory to sys.path so we can import backend modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.database import get_supabase_client
from data_engine.fetcher import TWEETS_TABLE, get_mock_news
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def seed():
    db = get_supabase_client()

    rows = [
        {
            "created_at": item.published_at,
            "content": item.content,
            "original_links": item.url,
        }
        for item in get_mock_news()
    ]

    logger.info(f"Seeding {len(rows)} tweets into {TWEETS_TABLE}...")
    try:
        db.table(TWEETS_TABLE).insert(rows).execute()
    except Exception as e:
        logger.error(f"Failed to seed {TWEETS_TABLE}: {e}")
        raise

if __name__ == "__main__":
    seed()
