from enum import Enum


class RuleActionEnum(Enum):
    ALLOW = "allow"
    DENY  = "deny"
