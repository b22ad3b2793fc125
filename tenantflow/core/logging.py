import logging
import sys


class ContextFormatter(logging.Formatter):
    """Custom formatter that handles optional entity and stage fields."""
    def format(self, record):
        # Add default values for entity and stage if not present
        if not hasattr(record, 'entity'):
            record.entity = '-'
        if not hasattr(record, 'stage'):
            record.stage = '-'
        return super().format(record)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(
        "%(asctime)s %(levelname)s %(name)s [entity=%(entity)s stage=%(stage)s] - %(message)s"
    ))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
    )
