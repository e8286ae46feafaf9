"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Domain services hold logic that spans the identity aggregate and its
    collaborators (store, federated provider, signing key).
    """

    pass
