"""Low-level helpers: dates, logging setup and the day-file log reader."""
