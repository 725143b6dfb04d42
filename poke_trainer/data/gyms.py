"""Gyms seeded into a fresh gyms document."""

DEFAULT_GYMS = {
    "Pewter City": {"leader": "Brock", "type": "rock", "defeated": False, "roster": []},
    "Cerulean City": {"leader": "Misty", "type": "water", "defeated": False, "roster": []},
    "Vermilion City": {"leader": "Lt. Surge", "type": "electric", "defeated": False, "roster": []},
    "Celadon City": {"leader": "Erika", "type": "grass", "defeated": False, "roster": []},
}
