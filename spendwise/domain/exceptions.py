"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Referenced budget, account, category, expense or insight does not exist"""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvariantViolationError(DomainException):
    """Mutation would break a data invariant (default categories, unique budgets)"""

    pass


class InvalidTransactionDataError(DomainException):
    """Ledger transaction data is malformed or invalid"""

    pass


class InsightServiceError(DomainException):
    """Insight service returned an error or is unavailable"""

    pass
