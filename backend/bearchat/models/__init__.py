from bearchat.models.credential import Credential

__all__ = ["Credential"]
