"""peasy — a validate-then-execute command pipeline for business operations."""

from peasy.bootstrap import configure
from peasy.domain.errors import (
    ConcurrencyException,
    DomainFailure,
    DomainObjectNotFoundException,
    PeasyException,
    ServiceException,
)
from peasy.domain.proxy import DataProxy
from peasy.domain.rules import Rule, RuleEvaluation, evaluate_rule, evaluate_rule_async
from peasy.domain.validation import DomainObject, ValidationResult
from peasy.services.base import ServiceBase
from peasy.services.command import (
    Command,
    CommandHooks,
    CommandState,
    ServiceCommand,
    ValidationOutcome,
)
from peasy.services.result import ExecutionResult

__version__ = "0.1.0"

__all__ = [
    "Command",
    "CommandHooks",
    "CommandState",
    "ConcurrencyException",
    "DataProxy",
    "DomainFailure",
    "DomainObject",
    "DomainObjectNotFoundException",
    "ExecutionResult",
    "PeasyException",
    "Rule",
    "RuleEvaluation",
    "ServiceBase",
    "ServiceCommand",
    "ServiceException",
    "ValidationOutcome",
    "ValidationResult",
    "configure",
    "evaluate_rule",
    "evaluate_rule_async",
]
