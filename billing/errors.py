"""billing/errors.py -- Errors raised by subscription sources."""


class BillingUnavailableError(Exception):
    """The subscription source could not be reached or read.

    Raised by both SubscriptionStore and BillingApiClient so the login engine
    handles a single infrastructure error type regardless of the source.
    """
