SUGGESTION_TEMPLATE = (
    "Consider optimizing '{operation}' usage: {count} calls at a base cost of {base_cost:,} gas each"
)

LOG_TEMPLATE = (
    "Analysis request received for subject={subject_id} ({subject_name}): "
    "operations={operations}, total_calls={total_calls}, avg_data_size={avg_data_size}"
)


def get_suggestion(operation: str, count: int, base_cost: int) -> str:
    return SUGGESTION_TEMPLATE.format(operation=operation, count=count, base_cost=base_cost)
