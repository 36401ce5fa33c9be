"""Wire-level constants shared with the Cloud Volumes Service API."""

VERB_FETCH = "GET"
VERB_CREATE = "POST"
VERB_REPLACE = "PUT"
VERB_REMOVE = "DELETE"

SUPPORTED_VERBS = {VERB_FETCH, VERB_CREATE, VERB_REPLACE, VERB_REMOVE}
BODYLESS_VERBS = {VERB_FETCH, VERB_REMOVE}

DEFAULT_API_HOST = "https://cloudvolumesgcp-api.netapp.com"
DEFAULT_API_VERSION = "v2"
DEFAULT_VOLUME_TYPE = "Volumes"

INTERNAL_ERROR_CODE = 500

LIFECYCLE_STATE_AVAILABLE = "available"
LIFECYCLE_STATE_ERROR = "error"


def volumes_path(region: str, vol_type: str = DEFAULT_VOLUME_TYPE) -> str:
    return f"{region}/{vol_type}"


def volume_path(region: str, volume_id: str) -> str:
    return f"{region}/{DEFAULT_VOLUME_TYPE}/{volume_id}"


def creation_token_path(region: str) -> str:
    return f"{region}/VolumeCreationToken"


def network_path(project: str, network: str) -> str:
    return f"projects/{project}/global/networks/{network}"
