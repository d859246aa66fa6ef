from wimctl.domain.errors import WimError


class AdapterError(WimError):
    pass


class CommandFailed(AdapterError):
    pass


class MetadataRetrievalError(AdapterError):
    pass


class ListingRetrievalError(AdapterError):
    pass


class IntegrityCheckFailed(AdapterError):
    pass
