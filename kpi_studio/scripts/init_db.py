#!/usr/bin/env python3
"""
Create the kpi and insight tables in the configured database
"""

import sys
from kpi_studio.config.config import configure_logging
from kpi_studio.tools.database_manager import DatabaseManager


def initialize_database(db_manager=None) -> bool:
    """Ensure the application tables exist"""
    print("Initializing database tables...")

    try:
        db_manager = db_manager or DatabaseManager()
        try:
            db_manager.ensure_tables()
        finally:
            db_manager.close()
    except Exception as e:
        print(f"✗ Failed to initialize database: {e}")
        return False

    print("✓ Database tables created successfully!")
    print("  - kpi table")
    print("  - insight table")
    return True


def main():
    """Main function"""
    configure_logging(log_file="")
    if not initialize_database():
        sys.exit(1)


if __name__ == "__main__":
    main()
