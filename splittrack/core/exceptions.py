class SplitTrackError(Exception):
    pass


class ConfigurationError(SplitTrackError):
    pass


class UnknownSplitError(ConfigurationError):
    def __init__(self, split_name: str):
        self.split_name = split_name
        super().__init__(f"unknown split: {split_name}")


class InvalidWeightsError(ConfigurationError):
    def __init__(self, split_name: str, reason: str):
        self.split_name = split_name
        super().__init__(f"invalid weights for {split_name}: {reason}")


class VaryStructureError(SplitTrackError):
    def __init__(self, split_name: str, message: str):
        self.split_name = split_name
        super().__init__(message)


class RemoteError(SplitTrackError):
    pass


class JobError(SplitTrackError):
    pass
