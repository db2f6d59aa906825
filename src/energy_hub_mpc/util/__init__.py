"""
General-purpose utilities shared by the energy hub controller.

- `logging.py`: the `LoggingUtil` class, which hands out loggers with a common
  format and a level controlled by the `LOGLEVEL` environment variable.
"""
