from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional, Sequence

if TYPE_CHECKING:
    from db.models import CartItem, Order, Product

StockFilter = Literal["", "lowstock", "outofstock"]


def money(value: float) -> str:
    return f"${value:.2f}"


def cart_total(items: Sequence[CartItem]) -> float:
    return sum(item.price * item.qty for item in items)


def filter_products(
    products: Sequence[Product],
    query: str = "",
    stock_filter: StockFilter = "",
    low_stock: int = 5,
) -> List[Product]:
    """
    Case-insensitive substring match over "name description", then an optional
    stock filter: "outofstock" keeps stock == 0, "lowstock" keeps 0 < stock <= low_stock.
    """
    q = (query or "").strip().lower()
    result = []
    for p in products:
        if q and q not in f"{p.name} {p.description}".lower():
            continue
        if stock_filter == "outofstock" and p.stock != 0:
            continue
        if stock_filter == "lowstock" and not (0 < p.stock <= low_stock):
            continue
        result.append(p)
    return result


def summarize_sales(
    orders: Sequence[Order], products: Sequence[Product], recent: int = 5
) -> Dict[str, Any]:
    """Dashboard figures. Cancelled orders are left out of the sales total."""
    total_sales = sum(o.total for o in orders if o.status.value != "cancelled")
    return {
        "total_sales": total_sales,
        "total_orders": len(orders),
        "total_products": len(products),
        "recent_orders": list(orders[:recent]),
    }


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[Any]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Render rows as a Markdown table.

    Args:
        headers: Column headers, or None to promote the first row.
        rows: Table body; cells are converted with str().
        aligns: 'l', 'c' or 'r' per column, default left.
    """
    if not rows and not headers:
        return ""
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    if aligns is None:
        aligns = ["l"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    # pipes inside cells would split the column
    def cell(v: Any) -> str:
        return str(v).replace("|", "\\|").replace("\n", " ")

    sep = {"l": ":---", "c": ":---:", "r": "---:"}
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(sep[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(cell(v) for v in row) + " |" for row in rows]
    return "\n".join(lines)
