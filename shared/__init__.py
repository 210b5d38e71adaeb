"""
Shared infrastructure for the BLL library.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging

- shared.infrastructure: Database plumbing
  - db.py: SQLAlchemy engine and session factories
  - correlation.py: Operation IDs for log correlation

- shared.utils: Utilities
  - exceptions.py: Error taxonomy with auto-logging

IMPORT EXAMPLES:
    from shared.config.settings import settings
    from shared.config.logging import get_logger
    from shared.infrastructure.db import get_db_context
    from shared.utils.exceptions import NotFoundError, PersistenceError
"""
