class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class ConstraintViolationError(BaseServiceError):
    """Raised when input breaks a ledger constraint before the pipeline runs."""
    pass

class InsufficientInventoryError(BaseServiceError):
    """Raised when product stock is below the requested order quantity."""

    def __init__(self, product_id: str, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient inventory for product {product_id}: "
            f"{available} available, {requested} requested"
        )

class OrderNotFoundError(BaseServiceError):
    """Raised when an order is not found."""
    pass

class PipelineStageError(BaseServiceError):
    """Raised when a required pipeline stage fails."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Pipeline stage '{stage}' failed: {cause}")
