def can_admit(capacity: int, current_occupant_count: int) -> bool:
    """Return True if a room of ``capacity`` beds holding ``current_occupant_count`` tenants can take one more.

    A capacity of 0 never admits anyone.
    """
    if capacity < 0 or current_occupant_count < 0:
        raise ValueError("capacity and occupant count must be non-negative")
    return current_occupant_count < capacity
