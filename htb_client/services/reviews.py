"""Paginated reviews for machines, challenges and sherlocks."""

from dataclasses import dataclass

from ..query import Query
from ..service import Service

PRODUCT_MACHINE = "machine"
PRODUCT_CHALLENGE = "challenge"
PRODUCT_SHERLOCK = "sherlock"


@dataclass(frozen=True)
class ReviewQuery(Query):
    product: str = PRODUCT_MACHINE
    product_id: int = 0

    def _path(self) -> str:
        return f"/v4/review/paginated/{self.product}/{self.product_id}"


class ReviewHandle(Service):
    def __init__(self, transport, product: str, product_id: int):
        super().__init__(transport)
        self.product = product
        self.product_id = product_id

    def list(self) -> ReviewQuery:
        return ReviewQuery(self.transport, product=self.product, product_id=self.product_id)


class Reviews(Service):
    def machine(self, machine_id: int) -> ReviewHandle:
        return ReviewHandle(self.transport, PRODUCT_MACHINE, machine_id)

    def challenge(self, challenge_id: int) -> ReviewHandle:
        return ReviewHandle(self.transport, PRODUCT_CHALLENGE, challenge_id)

    def sherlock(self, sherlock_id: int) -> ReviewHandle:
        return ReviewHandle(self.transport, PRODUCT_SHERLOCK, sherlock_id)
