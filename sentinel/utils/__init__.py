"""
Utils package initialization.
"""
from sentinel.utils.date_utils import (
    parse_date_string,
    coerce_date,
    days_to_nearest_deadline,
)
from sentinel.utils.aggregators import (
    aggregate_monthly,
    aggregate_by_district,
    pearson_correlation,
)
from sentinel.utils.constants import (
    DEFAULT_POLICY_TIMELINE,
    AGE_GROUPS,
)
