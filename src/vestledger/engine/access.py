"""Administrator authorization."""

from typing import Protocol, runtime_checkable

from .errors import NotAdministrator


@runtime_checkable
class Authorizer(Protocol):
    """Predicate distinguishing the administrator from every other caller."""

    def is_administrator(self, caller: str) -> bool:
        ...


class SingleOwner:
    """One designated administrator principal."""

    def __init__(self, owner: str):
        self.owner = owner

    def is_administrator(self, caller: str) -> bool:
        return caller == self.owner

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        if not self.is_administrator(caller):
            raise NotAdministrator(f"{caller} is not the administrator")
        self.owner = new_owner
