# domain/fund_types.py - PROVIDER ROUTING
from config.constants import CATEGORY_ETF, CATEGORY_MUTUAL_FUND, FUND_TYPE_ETF


def provider_category(fund_type):
    """Map a stored fund type tag to the provider's holdings category.

    Only ``etf`` is routed to the ETF endpoint; every other tag, including
    unknown ones, is treated as a mutual fund.
    """
    if fund_type == FUND_TYPE_ETF:
        return CATEGORY_ETF
    return CATEGORY_MUTUAL_FUND
