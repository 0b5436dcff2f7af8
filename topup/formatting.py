# Display helpers. Values stay plain integers everywhere else.


def format_robux(value) -> str:
    """Group-separated with commas: 1143 -> "1,143"."""
    try:
        return f"{int(value):,}"
    except (TypeError, ValueError):
        return str(value)


def format_rupiah(value) -> str:
    """Indonesian grouping with periods: 12500 -> "12.500"."""
    try:
        return f"{int(value):,}".replace(",", ".")
    except (TypeError, ValueError):
        return str(value)
