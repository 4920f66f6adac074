import shortuuid

ORDER_NUMBER_PREFIX = "ORD-"
ORDER_NUMBER_BASE = 1000


def generate_shortuuid() -> str:
    return shortuuid.uuid()


def format_order_number(sequence: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}{ORDER_NUMBER_BASE + sequence}"
