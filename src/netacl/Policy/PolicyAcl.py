from enum import Enum


class PolicyAcl(Enum):
    ALLOW_ALL = "open"
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"
