"""File-backed product catalog: ``{"products": [...], "categories": [...]}``."""

from __future__ import annotations

import json
import os
import re
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..common.domain import Category, Product
from ..common.errors import PersistenceError, ValidationError

_ID_PATTERN = re.compile(r"^VV(\d+)$")


class CatalogRepository:
    """Reads and writes the catalog JSON document.

    Every write happens under a process-wide lock and lands through a temp
    file + ``os.replace`` so readers never observe a half-written file.
    """

    def __init__(self, data_file: Path) -> None:
        self._data_file = Path(data_file)
        self._lock = threading.Lock()

    @property
    def data_file(self) -> Path:
        return self._data_file

    def load_products(self) -> List[Product]:
        products, _, _ = self._load()
        return products

    def load_categories(self) -> List[Category]:
        _, categories, _ = self._load()
        return categories

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self.load_products():
            if product.id == product_id:
                return product
        return None

    def add_product(self, fields: Mapping[str, Any]) -> Product:
        """Append a product with the next ``VVnnn`` id and return it."""

        if not str(fields.get("name", "")).strip():
            raise ValidationError("name is required", field="name")
        with self._lock:
            products, categories, last_seq = self._load()
            data = dict(fields)
            data["id"] = next_product_id([p.id for p in products], last_seq)
            data["createdAt"] = datetime.now(timezone.utc).isoformat()
            product = Product.from_dict(data)
            products.append(product)
            self._write(products, categories, product_seq([product.id], last_seq))
        return product

    def delete_product(self, product_id: str) -> bool:
        with self._lock:
            products, categories, last_seq = self._load()
            remaining = [p for p in products if p.id != product_id]
            if len(remaining) == len(products):
                return False
            self._write(remaining, categories, product_seq([p.id for p in products], last_seq))
        return True

    def _load(self) -> Tuple[List[Product], List[Category], int]:
        if not self._data_file.exists():
            return [], [], 0
        try:
            text = self._data_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError("read catalog", str(exc)) from exc
        if not text.strip():
            return [], [], 0
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceError("read catalog", f"{self._data_file.name} is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise PersistenceError("read catalog", "expected an object with products and categories")
        products = [
            Product.from_dict(item)
            for item in payload.get("products") or []
            if isinstance(item, dict)
        ]
        categories = [
            Category(id=str(item.get("id", "")), name=str(item.get("name", "")), count=int(item.get("count") or 0))
            for item in payload.get("categories") or []
            if isinstance(item, dict)
        ]
        try:
            last_seq = int(payload.get("lastProductSeq") or 0)
        except (TypeError, ValueError) as exc:
            raise PersistenceError("read catalog", "lastProductSeq must be an integer") from exc
        return products, categories, last_seq

    def _write(self, products: List[Product], categories: List[Category], last_seq: int) -> None:
        document: Dict[str, Any] = {
            "products": [p.to_dict() for p in products],
            "categories": [c.to_dict() for c in categories],
            # highest sequence ever issued; deleted ids are never reissued
            "lastProductSeq": last_seq,
        }
        content = json.dumps(document, ensure_ascii=False, indent=2) + "\n"
        directory = self._data_file.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".catalog-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
                os.replace(tmp_name, self._data_file)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError("write catalog", str(exc)) from exc


def product_seq(existing_ids: Iterable[str], floor: int = 0) -> int:
    """Highest numeric part of the ``VVnnn`` ids given, or ``floor`` if larger."""
    highest = floor
    for product_id in existing_ids:
        match = _ID_PATTERN.match(product_id or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def next_product_id(existing_ids: Iterable[str], last_seq: int = 0) -> str:
    """``VV`` + zero-padded sequence, one past the highest id ever issued."""
    return f"VV{product_seq(existing_ids, last_seq) + 1:03d}"
