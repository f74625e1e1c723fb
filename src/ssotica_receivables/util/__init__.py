from .dates import is_br_date_shape, parse_br_date

__all__ = ["is_br_date_shape", "parse_br_date"]
