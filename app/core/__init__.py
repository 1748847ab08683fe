"""
Core Application - Infrastructure shared by the domain apps.

Models (core.models):
    - BaseModel: Abstract model with timestamps
    - UUIDModel: BaseModel with a UUID primary key

Services (core.services):
    - BaseService: Logging and transaction helpers for service classes
    - ServiceResult: Success/failure wrapper for expected outcomes

Exceptions (core.exceptions):
    - BaseApplicationError and subclasses, each with an error_code
    - api_exception_handler: DRF handler rendering those errors

Resilience (core.circuit_breaker):
    - CircuitBreaker: Cache-backed breaker for out-of-process collaborators
"""
