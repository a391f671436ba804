from dataclasses import dataclass


@dataclass
class Pagination:
    """Page bookkeeping for the file listing. Pages are 1-based."""
    page_first: int
    page_last: int
    page_current: int
    page_next: int
    page_prev: int
    items_per_page: int
    total_items: int

    @classmethod
    def build(cls, current_page: int, items_per_page: int, total_items: int) -> "Pagination":
        if items_per_page < 1:
            raise ValueError("items_per_page must be at least 1")

        page_last = max(1, -(-total_items // items_per_page))
        current = min(max(1, current_page), page_last)
        return cls(
            page_first=1,
            page_last=page_last,
            page_current=current,
            page_next=min(current + 1, page_last),
            page_prev=max(current - 1, 1),
            items_per_page=items_per_page,
            total_items=total_items,
        )

    @property
    def has_next(self) -> bool:
        return self.page_current < self.page_last

    @property
    def has_prev(self) -> bool:
        return self.page_current > self.page_first
