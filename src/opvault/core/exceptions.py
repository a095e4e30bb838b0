"""
Exceptions for the OPVault reader
Everything derives from OpVaultError so callers have a single error catcher
"""


class OpVaultError(Exception):
    # general container for errors
    pass


class ContainerCorrupt(OpVaultError):
    # opdata01 blob too short, bad magic, length/size mismatch or tag mismatch
    pass


class ItemKeyCorrupt(OpVaultError):
    # wrapped item key has the wrong size or its tag doesn't match

    def __init__(self, message: str, item_id: str | None = None):
        super().__init__(message)
        self.item_id = item_id


class TagMismatch(OpVaultError):
    # item-level hmac over the sorted field set doesn't match

    def __init__(self, message: str, item_id: str | None = None):
        super().__init__(message)
        self.item_id = item_id


class MalformedRecord(OpVaultError):
    # required field missing, wrong type, bad base64 or undecodable JSON
    pass


class VaultNotFoundError(OpVaultError):
    # vault directory, profile directory or profile.js DNE
    pass


class VaultFormatError(OpVaultError):
    # a .js file is not wrapped the expected way or its JSON is broken
    pass
