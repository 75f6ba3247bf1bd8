"""Static vocabularies used by the classifiers.

Built once at import time.  Names compared case-insensitively are stored
lower-cased; everything else is stored exactly as written in PHP source.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Eager loading
# ---------------------------------------------------------------------------

# Calls that declare relationships to pre-load in an assignment chain.
EAGER_LOAD_METHODS = frozenset({"with", "load", "loadMissing"})

# Calls that add relationships onto an already-fetched value.
MERGE_LOAD_METHODS = frozenset({"load", "loadMissing"})

# Calls that test whether a relationship was already loaded.
PRESENCE_CHECK_METHODS = frozenset({"relationLoaded"})

# ---------------------------------------------------------------------------
# Relationship classifier exclusions (lower-cased)
# ---------------------------------------------------------------------------

EXCLUDED_NAMES = frozenset(
    {
        # identifiers and timestamps
        "id", "uuid", "ulid", "key", "created_at", "updated_at", "deleted_at",
        "email_verified_at", "remember_token", "timestamps",
        # common scalar columns
        "name", "first_name", "last_name", "full_name", "username", "email",
        "password", "title", "content", "body", "description", "summary",
        "status", "state", "type", "kind", "value", "data", "meta", "metadata",
        "slug", "code", "label", "url", "path", "phone", "locale", "color",
        "count", "total", "amount", "price", "cost", "quantity", "qty",
        "active", "enabled", "disabled", "visible", "order", "position",
        "sort", "priority", "score", "rank", "weight", "notes",
        # model internals
        "attributes", "original", "relations", "pivot", "exists",
        "wasrecentlychanged", "incrementing", "table", "connection",
        "fillable", "guarded", "hidden", "casts", "appends", "dates",
        # model helper methods
        "save", "update", "delete", "forcedelete", "restore", "fresh",
        "refresh", "replicate", "touch", "push", "fill", "forcefill",
        "load", "loadmissing", "loadcount", "loadsum", "relationloaded",
        "getrelation", "setrelation", "unsetrelation", "getattribute",
        "setattribute", "getkey", "getkeyname", "getroutekey", "toarray",
        "tojson", "jsonserialize", "only", "except", "makehidden",
        "makevisible", "append", "isdirty", "isclean", "waschanged",
        "getoriginal", "getchanges", "format", "tostring", "is", "isnot",
        "can", "cannot", "notify", "authorize", "trashed", "increment",
        "decrement",
    }
)

BOOLEAN_PREFIXES = ("is_", "has_", "can_", "should_", "was_", "will_")
BOOLEAN_CAMEL_PREFIXES = ("is", "has", "can", "should", "was", "will")
AGGREGATE_SUFFIXES = ("_count", "_total", "_sum", "_avg", "_min", "_max")
DERIVED_PREFIXES = ("raw_", "original_", "cached_", "computed_")
SCALAR_SUFFIXES = ("_id", "_at")

# ---------------------------------------------------------------------------
# Query classifier
# ---------------------------------------------------------------------------

# Terminal calls that execute a query.
QUERY_EXECUTION_METHODS = frozenset(
    {
        "get", "all", "first", "firstOrFail", "firstOr", "firstWhere",
        "find", "findOrFail", "findOr", "findMany", "sole", "value",
        "pluck", "count", "sum", "avg", "average", "min", "max",
        "exists", "doesntExist", "paginate", "simplePaginate",
        "cursorPaginate",
    }
)

# Record-fetching subset, used for the stricter bare-variable test.
FETCH_METHODS = frozenset(
    {
        "get", "all", "first", "firstOrFail", "firstOr", "firstWhere",
        "find", "findOrFail", "findOr", "findMany", "sole", "value", "pluck",
    }
)

FILTER_METHODS = frozenset(
    {
        "where", "orWhere", "whereIn", "whereNotIn", "whereNull",
        "whereNotNull", "whereBetween", "whereHas", "whereDoesntHave",
        "whereDate", "whereColumn", "whereKey", "whereRelation", "whereExists",
        "having", "orderBy", "orderByDesc", "latest", "oldest", "limit",
        "take", "skip", "offset", "groupBy", "join", "leftJoin", "select",
        "distinct", "has", "doesntHave", "query",
    }
)

# Batch iteration is the fix for per-item queries, never the problem.
BATCH_METHODS = frozenset(
    {"chunk", "chunkById", "chunkMap", "each", "eachById", "cursor", "lazy", "lazyById", "lazyByIdDesc"}
)

# Facades that always front a query builder.
QUERY_FACADES = frozenset({"DB"})
QUERY_FACADE_FQNS = frozenset(
    {
        "Illuminate\\Support\\Facades\\DB",
        "Illuminate\\Database\\Capsule\\Manager",
        "Illuminate\\Database\\DatabaseManager",
    }
)

_FACADE_UTILITIES = (
    "App", "Artisan", "Auth", "Blade", "Broadcast", "Bus", "Cache", "Config",
    "Context", "Cookie", "Crypt", "Date", "Event", "File", "Gate", "Hash",
    "Http", "Lang", "Log", "Mail", "Notification", "Password", "Process",
    "Queue", "RateLimiter", "Redirect", "Redis", "Request", "Response",
    "Route", "Schema", "Session", "Storage", "URL", "Validator", "View", "Vite",
)

# Capitalized symbols that are never data entities.
UTILITY_CLASSES = frozenset(
    _FACADE_UTILITIES
    + ("Arr", "Str", "Collection", "LazyCollection", "Carbon", "CarbonImmutable", "Number", "Js", "Uuid")
)
UTILITY_FQNS = frozenset(
    {f"Illuminate\\Support\\Facades\\{name}" for name in _FACADE_UTILITIES}
    | {
        "Illuminate\\Support\\Arr",
        "Illuminate\\Support\\Str",
        "Illuminate\\Support\\Collection",
        "Illuminate\\Support\\LazyCollection",
        "Illuminate\\Support\\Carbon",
        "Illuminate\\Support\\Number",
        "Carbon\\Carbon",
        "Carbon\\CarbonImmutable",
        "Ramsey\\Uuid\\Uuid",
    }
)

# Chains with this many calls or more are reported as complex.
COMPLEX_CHAIN_THRESHOLD = 3
