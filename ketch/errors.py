"""Errors raised by the ketch resource model."""


class KetchError(Exception):
    """Base class of every error raised by this package's resource model."""

    default_message = "ketch error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ProcessNotFoundError(KetchError):
    """An operation can not be completed because there is no such process."""

    default_message = "process not found"


class DeploymentNotFoundError(KetchError):
    """An operation can not be completed because there is no such deployment."""

    default_message = "deployment not found"


class DeleteFrameworkWithRunningAppsError(KetchError):
    """A framework can not be deleted because it contains running apps."""

    default_message = "failed to delete framework because the framework contains running apps"


class ChangeNamespaceWhenAppsRunningError(KetchError):
    """A framework's namespace can not be changed because it contains running apps."""

    default_message = "failed to change target namespace because the framework contains running apps"


class NamespaceIsUsedByAnotherFrameworkError(KetchError):
    """A namespace can not be used because another framework already uses it."""

    default_message = (
        "failed to change target namespace because the namespace is already used by another framework"
    )


class DecreaseQuotaError(KetchError):
    """A new app quota is smaller than the number of apps already running."""

    default_message = (
        "failed to decrease quota because the framework has more running apps than the new quota permits"
    )


class CanaryError(KetchError):
    """A canary deployment step can not be performed."""

    default_message = "canary deployment failed"