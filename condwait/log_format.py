"""
Custom logging format that adds the identity of the waited resource to json
logs
"""

# First Party
from alog import AlogJsonFormatter


class CondwaitJsonFormatter(AlogJsonFormatter):
    """Extends AlogJsonFormatter with the kind/name/namespace of the resource
    the current command is waiting on, and thread information
    """

    _FIELDS_TO_PRINT = AlogJsonFormatter._FIELDS_TO_PRINT + [
        "thread",
        "threadName",
        "kind",
        "resourceName",
        "resourceNamespace",
    ]

    def __init__(self, kind=None, name=None, namespace=None):
        super().__init__()
        self.kind = kind
        self.name = name
        self.namespace = namespace

    def format(self, record):
        if self.kind:
            record.kind = self.kind
        if self.name:
            record.resourceName = self.name
        if self.namespace:
            record.resourceNamespace = self.namespace
        return super().format(record)
