"""cryptdir: switch a directory between plain and encfs-encrypted-at-rest."""

__version__ = "0.1.0"
