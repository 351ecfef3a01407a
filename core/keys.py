# -*- coding: utf-8 -*-
"""Single source of truth for field names and diagnostic codes.

Why:
- Avoid typos scattered across validators, fixers and tests.
- Codes are stable identifiers: UI mappings and test assertions rely on them.

Keep codes stable. A code means exactly one defect; add a new code rather
than reusing an existing one with a different meaning.
"""

from __future__ import annotations


class FieldKeys:
    # message fields (attribute names of SiweMessageFields)
    SCHEME = "scheme"
    DOMAIN = "domain"
    ADDRESS = "address"
    STATEMENT = "statement"
    URI = "uri"
    VERSION = "version"
    CHAIN_ID = "chain_id"
    NONCE = "nonce"
    ISSUED_AT = "issued_at"
    EXPIRATION_TIME = "expiration_time"
    NOT_BEFORE = "not_before"
    REQUEST_ID = "request_id"
    RESOURCES = "resources"

    # pseudo fields used by structural / whole-message diagnostics
    STRUCTURE = "structure"
    WHITESPACE = "whitespace"
    OVERALL = "overall"
    MESSAGE = "message"
    UNKNOWN = "unknown"

    REQUIRED = (DOMAIN, ADDRESS, URI, VERSION, CHAIN_ID, NONCE, ISSUED_AT)


class Codes:
    # parser
    INVALID_HEADER = "INVALID_HEADER"
    MISSING_ADDRESS = "MISSING_ADDRESS"
    MISSING_URI = "MISSING_URI"
    MISSING_VERSION = "MISSING_VERSION"
    MISSING_CHAIN_ID = "MISSING_CHAIN_ID"
    MISSING_NONCE = "MISSING_NONCE"
    MISSING_ISSUED_AT = "MISSING_ISSUED_AT"
    FIELD_OUT_OF_ORDER = "FIELD_OUT_OF_ORDER"
    UNEXPECTED_LINE = "UNEXPECTED_LINE"
    PARSE_ERROR = "PARSE_ERROR"

    # engine
    MESSAGE_TOO_LARGE = "MESSAGE_TOO_LARGE"
    VALIDATOR_CRASH = "VALIDATOR_CRASH"

    # field validators
    DOMAIN_REQUIRED = "DOMAIN_REQUIRED"
    DOMAIN_INVALID_FORMAT = "DOMAIN_INVALID_FORMAT"
    DOMAIN_SECURITY_RISK = "DOMAIN_SECURITY_RISK"
    ADDRESS_REQUIRED = "ADDRESS_REQUIRED"
    ADDRESS_INVALID_FORMAT = "ADDRESS_INVALID_FORMAT"
    ADDRESS_NOT_CHECKSUM = "ADDRESS_NOT_CHECKSUM"
    ADDRESS_INVALID_CHECKSUM = "ADDRESS_INVALID_CHECKSUM"
    URI_REQUIRED = "URI_REQUIRED"
    URI_INVALID_FORMAT = "URI_INVALID_FORMAT"
    URI_UNSUPPORTED_SCHEME = "URI_UNSUPPORTED_SCHEME"
    URI_INSECURE_SCHEME = "URI_INSECURE_SCHEME"
    VERSION_REQUIRED = "VERSION_REQUIRED"
    VERSION_INVALID = "VERSION_INVALID"
    CHAIN_ID_REQUIRED = "CHAIN_ID_REQUIRED"
    CHAIN_ID_INVALID_FORMAT = "CHAIN_ID_INVALID_FORMAT"
    NONCE_REQUIRED = "NONCE_REQUIRED"
    NONCE_TOO_SHORT = "NONCE_TOO_SHORT"
    NONCE_WEAK_ENTROPY = "NONCE_WEAK_ENTROPY"
    NONCE_SEQUENTIAL = "NONCE_SEQUENTIAL"
    ISSUED_AT_REQUIRED = "ISSUED_AT_REQUIRED"
    ISSUED_AT_INVALID_FORMAT = "ISSUED_AT_INVALID_FORMAT"
    ISSUED_AT_TIME_DRIFT = "ISSUED_AT_TIME_DRIFT"
    EXPIRATION_TIME_INVALID_FORMAT = "EXPIRATION_TIME_INVALID_FORMAT"
    EXPIRATION_BEFORE_ISSUED = "EXPIRATION_BEFORE_ISSUED"
    MESSAGE_EXPIRED = "MESSAGE_EXPIRED"
    EXPIRATION_TOO_LONG = "EXPIRATION_TOO_LONG"
    EXPIRATION_TOO_SHORT = "EXPIRATION_TOO_SHORT"
    NOT_BEFORE_INVALID_FORMAT = "NOT_BEFORE_INVALID_FORMAT"
    STATEMENT_LINE_BREAKS = "STATEMENT_LINE_BREAKS"
    STATEMENT_TOO_LONG = "STATEMENT_TOO_LONG"

    # security validators
    SECURITY_NO_NONCE = "SECURITY_NO_NONCE"
    SECURITY_LOW_NONCE_ENTROPY = "SECURITY_LOW_NONCE_ENTROPY"
    SECURITY_PREDICTABLE_NONCE = "SECURITY_PREDICTABLE_NONCE"
    SECURITY_NO_EXPIRATION = "SECURITY_NO_EXPIRATION"
    SECURITY_NO_DOMAIN = "SECURITY_NO_DOMAIN"
    SECURITY_SUSPICIOUS_DOMAIN = "SECURITY_SUSPICIOUS_DOMAIN"
    SECURITY_DOMAIN_MISMATCH = "SECURITY_DOMAIN_MISMATCH"
    SECURITY_PORT_MISMATCH = "SECURITY_PORT_MISMATCH"
    SECURITY_DEVELOPMENT_DOMAIN = "SECURITY_DEVELOPMENT_DOMAIN"
    SECURITY_FUTURE_ISSUED_AT = "SECURITY_FUTURE_ISSUED_AT"
    SECURITY_OLD_ISSUED_AT = "SECURITY_OLD_ISSUED_AT"
    SECURITY_LONG_LIFETIME = "SECURITY_LONG_LIFETIME"
    SECURITY_SHORT_LIFETIME = "SECURITY_SHORT_LIFETIME"
    SECURITY_NOT_YET_VALID = "SECURITY_NOT_YET_VALID"
    SECURITY_SHORT_NONCE = "SECURITY_SHORT_NONCE"
    SECURITY_WEAK_NONCE_PATTERN = "SECURITY_WEAK_NONCE_PATTERN"
    SECURITY_LOW_NONCE_COMPLEXITY = "SECURITY_LOW_NONCE_COMPLEXITY"
    SECURITY_INVALID_RESOURCE_URI = "SECURITY_INVALID_RESOURCE_URI"
    SECURITY_INSECURE_RESOURCE = "SECURITY_INSECURE_RESOURCE"
    SECURITY_SUSPICIOUS_RESOURCE_DOMAIN = "SECURITY_SUSPICIOUS_RESOURCE_DOMAIN"
    SECURITY_BROAD_RESOURCE_ACCESS = "SECURITY_BROAD_RESOURCE_ACCESS"
    SECURITY_TOO_MANY_RESOURCES = "SECURITY_TOO_MANY_RESOURCES"
    SECURITY_LOW_BASELINE = "SECURITY_LOW_BASELINE"
    SECURITY_TESTING_INDICATORS = "SECURITY_TESTING_INDICATORS"

    # line breaks / whitespace
    EXTRA_LINE_BREAK_HEADER_ADDRESS = "EXTRA_LINE_BREAK_HEADER_ADDRESS"
    EXTRA_LINE_BREAKS_BEFORE_STATEMENT = "EXTRA_LINE_BREAKS_BEFORE_STATEMENT"
    EXTRA_LINE_BREAKS_BEFORE_URI = "EXTRA_LINE_BREAKS_BEFORE_URI"
    EXTRA_LINE_BREAKS_BETWEEN_FIELDS = "EXTRA_LINE_BREAKS_BETWEEN_FIELDS"
    EXTRA_LINE_BREAKS_BEFORE_OPTIONAL_FIELD = "EXTRA_LINE_BREAKS_BEFORE_OPTIONAL_FIELD"
    MISSING_LINE_BREAK_ADDRESS_STATEMENT = "MISSING_LINE_BREAK_ADDRESS_STATEMENT"
    MISSING_LINE_BREAK_STATEMENT_URI = "MISSING_LINE_BREAK_STATEMENT_URI"
    MISSING_LINE_BREAK_NO_STATEMENT = "MISSING_LINE_BREAK_NO_STATEMENT"
    TRAILING_WHITESPACE = "TRAILING_WHITESPACE"
    TOO_MANY_CONSECUTIVE_EMPTY_LINES = "TOO_MANY_CONSECUTIVE_EMPTY_LINES"

    LINE_BREAK_CODES = frozenset({
        EXTRA_LINE_BREAK_HEADER_ADDRESS,
        EXTRA_LINE_BREAKS_BEFORE_STATEMENT,
        EXTRA_LINE_BREAKS_BEFORE_URI,
        EXTRA_LINE_BREAKS_BETWEEN_FIELDS,
        EXTRA_LINE_BREAKS_BEFORE_OPTIONAL_FIELD,
        MISSING_LINE_BREAK_ADDRESS_STATEMENT,
        MISSING_LINE_BREAK_STATEMENT_URI,
        MISSING_LINE_BREAK_NO_STATEMENT,
        TOO_MANY_CONSECUTIVE_EMPTY_LINES,
    })

    DEV_INDICATOR_CODES = frozenset({
        SECURITY_DEVELOPMENT_DOMAIN,
        SECURITY_TESTING_INDICATORS,
    })
