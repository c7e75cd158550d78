from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable

from netacl.errors import AclBuildError, EvaluationError, NotationError
from netacl.Policy.PolicyAcl import PolicyAcl as Policy
from netacl.Policy.RuleActionEnum import RuleActionEnum as Action
from netacl.Policy.VerdictEnum import VerdictEnum as Verdict
from netacl.rules import Rule, address_to_int, parse_rule

logger = logging.getLogger(__name__)


@dataclass
class EvaluationStats:
    """Counts candidates rejected because they were not valid addresses."""

    malformed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_malformed(self) -> None:
        with self._lock:
            self.malformed += 1


@dataclass(frozen=True)
class Decision:
    verdict: Verdict
    reason: str
    rule: Rule | None = None

    @property
    def permitted(self) -> bool:
        return self.verdict is Verdict.PERMIT


def _first_match(rules: tuple[Rule, ...], address: int) -> Rule | None:
    for rule in rules:
        if rule.matches(address):
            return rule
    return None


@dataclass(frozen=True)
class AccessControlList:
    """Decide whether a source address may reach the service.

    Policy:
      - address matches a deny rule        -> reject, whatever the allow list says
      - no allow rules                     -> permit
      - allow rules present                -> permit only addresses they match
      - address is not valid IPv4          -> reject
    """

    allow_rules: tuple[Rule, ...] = ()
    deny_rules: tuple[Rule, ...] = ()
    stats: EvaluationStats = field(default_factory=EvaluationStats, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "allow_rules", tuple(self.allow_rules))
        object.__setattr__(self, "deny_rules", tuple(self.deny_rules))
        for rules, action in ((self.allow_rules, Action.ALLOW), (self.deny_rules, Action.DENY)):
            for rule in rules:
                if rule.action is not action:
                    raise ValueError(f"{rule} does not belong in the {action.value} list")

    @classmethod
    def from_notations(
        cls,
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
        stats: EvaluationStats | None = None,
    ) -> AccessControlList:
        """Parse every notation; raise AclBuildError listing all failures."""
        errors: list[NotationError] = []
        parsed: dict[Action, list[Rule]] = {Action.ALLOW: [], Action.DENY: []}

        for action, notations in ((Action.ALLOW, allow), (Action.DENY, deny)):
            for raw in notations:
                try:
                    parsed[action].append(parse_rule(raw, action))
                except NotationError as e:
                    logger.error("Rejected %s rule: %s", action.value, e)
                    errors.append(e)

        if errors:
            raise AclBuildError(errors)

        return cls(
            allow_rules=tuple(parsed[Action.ALLOW]),
            deny_rules=tuple(parsed[Action.DENY]),
            stats=stats if stats is not None else EvaluationStats(),
        )

    @property
    def policy(self) -> Policy:
        if self.allow_rules:
            return Policy.WHITELIST
        if self.deny_rules:
            return Policy.BLACKLIST
        return Policy.ALLOW_ALL

    @property
    def is_restricted(self) -> bool:
        return self.policy != Policy.ALLOW_ALL

    def explain(self, address: str | int) -> Decision:
        try:
            candidate = address_to_int(address)
        except EvaluationError as e:
            self.stats.record_malformed()
            logger.warning("%s; rejecting", e)
            return Decision(Verdict.REJECT, "malformed address")

        denied_by = _first_match(self.deny_rules, candidate)
        if denied_by is not None:
            logger.debug("%s rejected by %s", address, denied_by)
            return Decision(Verdict.REJECT, "matches deny rule", denied_by)

        if not self.allow_rules:
            return Decision(Verdict.PERMIT, "no allow list")

        allowed_by = _first_match(self.allow_rules, candidate)
        if allowed_by is None:
            logger.debug("%s rejected: not in allow list", address)
            return Decision(Verdict.REJECT, "not in allow list")
        return Decision(Verdict.PERMIT, "matches allow rule", allowed_by)

    def evaluate(self, address: str | int) -> Verdict:
        return self.explain(address).verdict

    def is_allowed(self, address: str | int) -> bool:
        return self.evaluate(address) is Verdict.PERMIT

    def describe_rules(self) -> list[str]:
        lines: list[str] = []
        for rule in self.allow_rules:
            lines.append(f"allow {rule.range}")
        for rule in self.deny_rules:
            lines.append(f"deny  {rule.range}")
        return lines
