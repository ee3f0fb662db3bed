"""Archive manually tagged single-sport FIT activities by date, sport and duration."""

__version__ = "0.1.0"
