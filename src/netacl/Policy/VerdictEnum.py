from enum import Enum


class VerdictEnum(Enum):
    PERMIT = "permit"
    REJECT = "reject"
