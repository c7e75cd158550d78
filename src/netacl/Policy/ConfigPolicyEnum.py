from enum import Enum


class ConfigPolicyEnum(Enum):
    CONFIG_FILE_ENV     = "NETACL_CONFIG_FILE"
    DEFAULT_CONFIG_FILE = "config/config.yml"
    SALT_ENV            = "NETACL_SALT"
    SALT_FILE_ENV       = "NETACL_SALT_FILE"
    DEFAULT_SALT_FILE   = ".netacl.salt"
    EXTERN_ADDR_ENV     = "NETACL_EXTERN_ADDR"
    LOCALNETS_ENV       = "NETACL_LOCALNETS"
    DS_PROVIDER_ENV     = "NETACL_DS_PROVIDER"
    DS_PARAMETERS_ENV   = "NETACL_DS_PARAMETERS"
    REGISTRAR_INTF_ENV  = "NETACL_REGISTRAR_INTF"
    REMOTE_PROVIDER     = "redis_data_provider"
    FILES_PROVIDER      = "files_data_provider"
    API_VERSION         = "v1beta1"
