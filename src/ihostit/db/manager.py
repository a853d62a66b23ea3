import sqlite3
from urllib.parse import urlparse

import psycopg2
from psycopg2.extras import RealDictCursor

DROP_SCRIPT = """
DROP TABLE IF EXISTS apps;
DROP TABLE IF EXISTS categories;
DROP TABLE IF EXISTS sync_runs;
"""

CREATE_SCRIPT_SQLITE = """
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    description TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS apps (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    description TEXT,
    homepage_url TEXT NOT NULL,
    source_code_url TEXT,
    demo_url TEXT,
    license TEXT NOT NULL DEFAULT 'Unknown',
    language TEXT,
    category_id INTEGER NOT NULL,
    subcategory TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(category_id) REFERENCES categories(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_apps_category_id ON apps(category_id);

CREATE TABLE IF NOT EXISTS sync_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    status TEXT NOT NULL CHECK(status IN ('pending', 'in_progress', 'completed', 'failed')),
    total_apps INTEGER NOT NULL DEFAULT 0,
    total_categories INTEGER NOT NULL DEFAULT 0,
    message TEXT,
    started_at TIMESTAMP NOT NULL,
    finished_at TIMESTAMP
);
"""

CREATE_SCRIPT_POSTGRES = """
CREATE TABLE IF NOT EXISTS categories (
    id SERIAL PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    description TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS apps (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    homepage_url TEXT NOT NULL,
    source_code_url TEXT,
    demo_url TEXT,
    license TEXT NOT NULL DEFAULT 'Unknown',
    language TEXT,
    category_id INTEGER NOT NULL,
    subcategory TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(category_id) REFERENCES categories(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_apps_category_id ON apps(category_id);

CREATE TABLE IF NOT EXISTS sync_runs (
    id SERIAL PRIMARY KEY,
    status TEXT NOT NULL CHECK(status IN ('pending', 'in_progress', 'completed', 'failed')),
    total_apps INTEGER NOT NULL DEFAULT 0,
    total_categories INTEGER NOT NULL DEFAULT 0,
    message TEXT,
    started_at TIMESTAMP NOT NULL,
    finished_at TIMESTAMP
);
"""


class DatabaseManager:
    def __init__(self, db_url: str):
        self.db_url = db_url
        self.parsed_url = urlparse(db_url)
        self.db_type = self.parsed_url.scheme

    def get_connection(self):
        """Get a raw database connection with rows addressable by column name."""
        if self.db_type == 'sqlite':
            # Remove 'sqlite:///' or 'sqlite://' prefix
            path = self.db_url.replace('sqlite:///', '').replace('sqlite://', '')
            conn = sqlite3.connect(path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            return conn
        elif self.db_type == 'postgresql' or self.db_type == 'postgres':
            return psycopg2.connect(self.db_url, cursor_factory=RealDictCursor)
        else:
            raise ValueError(f"Unsupported database type: {self.db_type}")

    def execute_script(self, script: str):
        """Execute a raw SQL script."""
        conn = self.get_connection()
        try:
            cursor = conn.cursor()
            cursor.executescript(script) if self.db_type == 'sqlite' else cursor.execute(script)
            conn.commit()
        finally:
            conn.close()

    def initialize_db(self):
        """Create the catalog tables if they do not exist yet."""
        if self.db_type == 'sqlite':
            self.execute_script(CREATE_SCRIPT_SQLITE)
        else:
            self.execute_script(CREATE_SCRIPT_POSTGRES)

    def reset_db(self):
        """Drop and recreate all catalog tables, sync history included."""
        self.execute_script(DROP_SCRIPT)
        self.initialize_db()
