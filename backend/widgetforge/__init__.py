"""Document/version engine behind the widget editor."""

__version__ = "0.1.0"
