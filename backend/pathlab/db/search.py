from sqlalchemy import func


def contains_ci(column, term: str):
    """Case-insensitive substring match, Unicode aware"""
    return func.py_lower(column).like(f"%{term.lower()}%")
