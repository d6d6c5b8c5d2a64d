class GrassNetException(Exception):
    pass


class CatalogError(GrassNetException):
    pass


class UnknownDataset(CatalogError):
    def __init__(self, message: str, dataset: str = None):
        super().__init__(message)
        self.dataset = dataset


class InvalidIndex(GrassNetException, IndexError):
    def __init__(self, message: str, index: int = None, count: int = None):
        super().__init__(message)
        self.index = index
        self.count = count


class ModelLoadError(GrassNetException):
    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class InferenceError(GrassNetException):
    pass


class InvalidArgument(GrassNetException, ValueError):
    pass
