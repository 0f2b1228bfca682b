from enum import Enum


class TransactionValidationReasonCode(str, Enum):
    MISSING_TRANSACTION_DATE = "MISSING_TRANSACTION_DATE"
    MISSING_TRANSACTION_TYPE = "MISSING_TRANSACTION_TYPE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    MISSING_ACCOUNT = "MISSING_ACCOUNT"
    AMBIGUOUS_ACCOUNT = "AMBIGUOUS_ACCOUNT"
    MISSING_CLIENT_PROFILE = "MISSING_CLIENT_PROFILE"
    MISSING_SECURITY = "MISSING_SECURITY"
    MISSING_QUANTITY = "MISSING_QUANTITY"
    MISSING_PRICE = "MISSING_PRICE"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    FUTURE_TRANSACTION_DATE = "FUTURE_TRANSACTION_DATE"
    INVALID_DATE_ORDER = "INVALID_DATE_ORDER"
    VALUE_OUT_OF_RANGE = "VALUE_OUT_OF_RANGE"
