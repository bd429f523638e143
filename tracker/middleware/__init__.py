"""Request middleware: logging setup and request timing."""
