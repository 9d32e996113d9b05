"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from parsers.product_csv_parser import CandidateRecord


class ProductFactory:
    """
    Factory for creating test product rows.

    Usage:
        # Create with defaults
        product = ProductFactory.create()

        # Create with overrides
        product = ProductFactory.create(name="Pão de Mel", category="Embalados")

        # Create multiple
        products = ProductFactory.create_batch(5)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        name: Optional[str] = None,
        category: Optional[str] = None,
        unit: str = "piece",
        description: Optional[str] = None,
        created_at: Optional[str] = None
    ) -> dict:
        """
        Create a single product dict.

        Returns:
            Product dict matching database schema
        """
        counter = cls._next_counter()
        now = datetime.utcnow().isoformat() + "Z"

        return {
            "id": id or str(uuid4()),
            "name": name or f"Test Product {counter}",
            "category": category or "Salgados",
            "unit": unit,
            "description": description,
            "created_at": created_at or now
        }

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list:
        """Create multiple products."""
        return [cls.create(**overrides) for _ in range(count)]

    @classmethod
    def reset_counter(cls):
        """Reset the counter (call in test setup if needed)."""
        cls._counter = 0


class CandidateRecordFactory:
    """
    Factory for validated, not yet imported CSV records.

    Usage:
        records = CandidateRecordFactory.create_batch(7)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        name: Optional[str] = None,
        category: str = "Salgados",
        unit: Optional[str] = "piece",
        description: Optional[str] = None,
        row_number: Optional[int] = None
    ) -> CandidateRecord:
        """Create a single candidate record."""
        counter = cls._next_counter()

        return CandidateRecord(
            name=name or f"Product {counter}",
            category=category,
            row_number=row_number or counter,
            unit=unit,
            description=description
        )

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list[CandidateRecord]:
        """Create multiple records named "Product 1".."Product N" in order."""
        return [
            cls.create(name=f"Product {i}", row_number=i, **overrides)
            for i in range(1, count + 1)
        ]


def build_csv(rows: list[list[str]], header: Optional[list[str]] = None, newline: str = "\n") -> str:
    """
    Join rows into CSV text without any quoting.

    Callers quote fields themselves when a test needs it.
    """
    header = header if header is not None else ["Product Name", "Category"]
    lines = [",".join(header)] + [",".join(row) for row in rows]
    return newline.join(lines) + newline
