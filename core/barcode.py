"""
Barcode Resolution

Resolves a scanned barcode to a product name and ingredient text before the
engine runs. Looks in the local SQLite product catalogue first and falls back
to the Open Food Facts product API; remote hits are cached locally.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

logger = logging.getLogger(__name__)

OPEN_FOOD_FACTS_URL = "https://world.openfoodfacts.org/api/v0/product/{barcode}.json"


class ProductRecord(BaseModel):
    barcode: str
    name: str = ""
    ingredients_text: str = ""
    source: str = "catalog"


class ProductCatalog:
    """SQLite-backed products table keyed by barcode."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize the database schema."""
        conn = self._connect()
        try:
            conn.execute("""
            CREATE TABLE IF NOT EXISTS products (
                barcode TEXT PRIMARY KEY,
                name TEXT,
                ingredients_text TEXT,
                source TEXT,
                updated_at TEXT
            )
            """)
            conn.commit()
        finally:
            conn.close()

    def get(self, barcode: str) -> Optional[ProductRecord]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT barcode, name, ingredients_text, source FROM products WHERE barcode = ?",
                (barcode,),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return ProductRecord(
            barcode=row["barcode"],
            name=row["name"] or "",
            ingredients_text=row["ingredients_text"] or "",
            source=row["source"] or "catalog",
        )

    def upsert(self, product: ProductRecord):
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO products (barcode, name, ingredients_text, source, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(barcode) DO UPDATE SET
                    name = excluded.name,
                    ingredients_text = excluded.ingredients_text,
                    source = excluded.source,
                    updated_at = excluded.updated_at
                """,
                (
                    product.barcode,
                    product.name,
                    product.ingredients_text,
                    product.source,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()


def fetch_open_food_facts(barcode: str, timeout: float = 10.0, session: Any = None) -> Optional[ProductRecord]:
    """
    Look a barcode up on Open Food Facts.

    Returns None when the product is unknown or the request fails.
    """
    http = session or requests
    url = OPEN_FOOD_FACTS_URL.format(barcode=barcode)
    try:
        r = http.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("Open Food Facts lookup failed for %s: %s", barcode, e)
        return None

    if r.status_code != 200:
        logger.info("Open Food Facts returned HTTP %s for %s", r.status_code, barcode)
        return None

    try:
        data: Dict[str, Any] = r.json()
    except ValueError:
        logger.warning("Open Food Facts returned invalid JSON for %s", barcode)
        return None

    if data.get("status") != 1 or not isinstance(data.get("product"), dict):
        return None

    p = data["product"]
    ingredients_text = (
        p.get("ingredients_text_zh")
        or p.get("ingredients_text")
        or p.get("ingredients_text_en")
        or ""
    )
    return ProductRecord(
        barcode=barcode,
        name=p.get("product_name") or "",
        ingredients_text=ingredients_text,
        source="open_food_facts",
    )


class BarcodeResolver:
    """Barcode -> ProductRecord with ingredient text."""

    def __init__(
        self,
        catalog: ProductCatalog,
        use_open_food_facts: bool = True,
        timeout: float = 10.0,
        session: Any = None,
    ):
        self.catalog = catalog
        self.use_open_food_facts = use_open_food_facts
        self.timeout = timeout
        self.session = session

    def resolve(self, barcode: str) -> Optional[ProductRecord]:
        barcode = (barcode or "").strip()
        if not barcode:
            return None

        product = self.catalog.get(barcode)
        if product and product.ingredients_text.strip():
            logger.info("Barcode %s resolved from local catalog", barcode)
            return product

        if not self.use_open_food_facts:
            return product

        remote = fetch_open_food_facts(barcode, timeout=self.timeout, session=self.session)
        if remote and remote.ingredients_text.strip():
            logger.info("Barcode %s resolved from Open Food Facts", barcode)
            self.catalog.upsert(remote)
            return remote

        return product or remote
