"""
Script to create the database tables for local development.
Run with: python init_db.py  (production schemas are managed with `alembic upgrade head`)
"""
from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from app.db.session import init_db  # noqa: E402


def main():
    """Create users and saved_businesses tables."""
    print("Initializing database...")
    init_db()
    print("Done!")


if __name__ == "__main__":
    main()
