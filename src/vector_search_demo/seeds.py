"""Sample documents inserted into an empty collection on first boot."""

from __future__ import annotations

from typing import Any

SAMPLE_PRODUCTS: tuple[dict[str, Any], ...] = (
    {
        "title": "Professional DSLR Camera",
        "description": (
            "High-end digital camera with 24MP sensor, 4K video capabilities, "
            "and weather-sealed body"
        ),
        "category": "Electronics",
        "price": 1299.99,
        "image": "/api/placeholder/400/400",
    },
    {
        "title": "Ergonomic Office Chair",
        "description": (
            "Adjustable office chair with lumbar support, mesh back, and premium "
            "cushioning"
        ),
        "category": "Furniture",
        "price": 299.99,
        "image": "/api/placeholder/400/400",
    },
    {
        "title": "Trail Running Shoes",
        "description": (
            "Lightweight running shoes with grippy outsole and breathable mesh "
            "upper for off-road trails"
        ),
        "category": "Footwear",
        "price": 129.99,
        "image": "/api/placeholder/400/400",
    },
    {
        "title": "Stainless Steel Water Bottle",
        "description": (
            "Insulated bottle that keeps drinks cold for 24 hours, leak-proof lid"
        ),
        "category": "Outdoor",
        "price": 34.5,
        "image": "/api/placeholder/400/400",
    },
)

SAMPLE_BOOKS: tuple[dict[str, Any], ...] = (
    {
        "title": "The Book of the Dead",
        "author": "Unknown scribes",
        "summary": (
            "Funerary spells guiding the deceased through the Duat, including "
            "the weighing of the heart against the feather of Maat."
        ),
        "period": "New Kingdom",
        "keywords": ["afterlife", "Osiris", "Maat", "funerary"],
    },
    {
        "title": "The Pyramid Texts",
        "author": "Unknown priests",
        "summary": (
            "The oldest religious writings of Egypt, carved in the burial "
            "chambers of Old Kingdom pyramids to protect the king's ascent."
        ),
        "period": "Old Kingdom",
        "keywords": ["kingship", "Ra", "pyramid", "funerary"],
    },
    {
        "title": "The Story of Sinuhe",
        "author": "Unknown",
        "summary": (
            "A court official flees Egypt after the death of Amenemhat I and "
            "longs to return home to be buried in his homeland."
        ),
        "period": "Middle Kingdom",
        "keywords": ["exile", "loyalty", "literature"],
    },
    {
        "title": "The Instruction of Ptahhotep",
        "author": "Ptahhotep",
        "summary": (
            "Wisdom literature of a vizier advising his son on humility, "
            "justice and right speech in accordance with Maat."
        ),
        "period": "Old Kingdom",
        "keywords": ["wisdom", "Maat", "ethics"],
    },
)
