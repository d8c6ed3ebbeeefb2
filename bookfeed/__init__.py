"""bookfeed - Book discovery feed data layer

This package contains the core modules:
- Expiring LRU book cache (cache_manager.py)
- Dual-source lookup with fallback (repository.py)
- Local shelf membership store (shelf_store.py)
- Feed query rotation and page dedup (feed.py)
- Data model (book.py)
- CLI interface (main.py)
"""

__version__ = "0.1.0"
