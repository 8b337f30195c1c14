"""Message mappings for API responses."""

class Messages:
    """Centralized, stable human-readable messages for API responses."""

    # Authentication messages
    AUTH = {
        "authentication_required": "Authentication required. Please login.",
        "invalid_credentials": "Could not validate credentials",
        "user_inactive": "User account is deactivated",
        "invalid_token": "Invalid token",
    }

    # Appraisal workflow messages
    APPRAISAL = {
        "not_found": "Appraisal not found.",
        "not_found_with_id": "Appraisal {appraisal_id} not found.",
        "forbidden_view": "You are not allowed to view this appraisal.",
        "forbidden_edit": "Only the owning teacher may edit this appraisal.",
        "forbidden_action": "Your role ({role}) may not {action} an appraisal in status {status}.",
        "forbidden_unauthenticated": "An authenticated user is required for this operation.",
        "invalid_transition": "Action '{action}' is not allowed from status {status}.",
        "override_same_status": "Appraisal is already in status {status}.",
        "override_target_required": "An administrative override needs a target status.",
        "override_comment_required": "An administrative override needs a comment.",
        "override_target_invalid": "'{status}' is not an appraisal status.",
        "unknown_action": "Unknown workflow action '{action}' for status {status}.",
        "invalid_state": "Appraisal in status {status} can no longer be edited.",
        "conflict": "Appraisal {appraisal_id} was changed by someone else. Reload and try again.",
        "conflict_with_version": "Appraisal {appraisal_id} is at version {actual}, expected version {expected}.",
        "forbidden_provision": "Only an administrator may provision appraisals.",
        "not_a_teacher": "User {user_id} is not a teacher and cannot be appraised.",
        "duplicate": "Teacher {teacher_id} already has an appraisal in cycle {cycle_id}.",
        "cycle_closed": "Cycle {cycle_id} is closed; appraisals can only be provisioned in the open cycle.",
    }

    # Part messages
    PART = {
        "unknown_part": "Unknown appraisal part '{part_key}'.",
        "invalid_values": "Invalid values for part {part_key}: {errors}",
    }

    # User messages
    USER = {
        "not_found": "User not found",
        "not_found_with_id": "User {user_id} not found",
    }

    # Cycle messages
    CYCLE = {
        "no_open_cycle": "There is no open appraisal cycle.",
        "not_found_with_id": "Appraisal cycle {cycle_id} not found.",
        "forbidden_manage": "Only an administrator may manage appraisal cycles.",
        "invalid_dates": "Cycle must end after it starts ({start_date} to {end_date}).",
        "already_exists": "A cycle for academic year {academic_year} already exists.",
    }

    # Report messages
    REPORT = {
        "forbidden": "Your role ({role}) may not view appraisal reports.",
    }


def get_message(category: str, key: str, **kwargs) -> str:
    """Get a message from the specified category and format it with kwargs."""
    category_messages = getattr(Messages, category.upper(), {})
    message = category_messages.get(key, f"Message not found: {category}.{key}")
    return message.format(**kwargs) if kwargs else message
