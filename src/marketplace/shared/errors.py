"""Error raised when an actor lacks ownership of the thing they try to change.

Missing aggregates surface as `protean.exceptions.ObjectNotFoundError` and
business-rule violations as `protean.exceptions.ValidationError`; Protean has
no ownership error of its own, so this one carries the same `messages` shape.
"""


class UnauthorizedError(Exception):
    def __init__(self, messages):
        self.messages = messages
        super().__init__(messages)

    def __str__(self):
        return str(self.messages)
