from . import reputation, reward  # noqa: F401  # registers policies
