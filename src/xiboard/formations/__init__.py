from .catalog import InMemoryFormationCatalog, JsonFormationCatalog, formation_from_dict, load_bundle
from .roster import load_teams, player_from_dict

__all__ = [
    "InMemoryFormationCatalog",
    "JsonFormationCatalog",
    "formation_from_dict",
    "load_bundle",
    "load_teams",
    "player_from_dict",
]
