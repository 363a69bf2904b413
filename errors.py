from __future__ import annotations


class BattleError(Exception):
    """Base for engine errors surfaced to the host."""


class InvalidInputError(BattleError):
    def __init__(self, field: str, detail: str):
        super().__init__(f"Invalid {field}: {detail}")
        self.field = field
        self.detail = detail


class CatalogError(BattleError):
    def __init__(self, path: str, detail: str):
        super().__init__(f"Failed loading '{path}': {detail}")
        self.path = path
        self.detail = detail


class UnknownSpeciesError(CatalogError):
    def __init__(self, species_id: str):
        super().__init__("species", f"unknown species id '{species_id}'")
        self.species_id = species_id
