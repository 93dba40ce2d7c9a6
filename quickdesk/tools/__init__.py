from quickdesk.tools.tickets import (
    search_tickets_tool, search_tickets,
    create_ticket_tool, create_ticket,
    assign_ticket_tool, assign_ticket,
    update_ticket_status_tool, update_ticket_status,
    ticket_stats_tool, ticket_stats,
    ticket_board_tool, ticket_board,
)
from quickdesk.tools.users import (
    get_user_profile_tool, get_user_profile,
    update_profile_tool, update_profile,
    list_users_tool, list_users,
    update_user_role_tool, update_user_role,
    invite_user_tool, invite_user,
    user_ticket_stats_tool, user_ticket_stats,
)
from quickdesk.tools.categories import (
    list_categories_tool, list_categories,
    create_category_tool, create_category,
    update_category_tool, update_category,
    toggle_category_active_tool, toggle_category_active,
)

# Registry mapping tool name -> {"tool": types.Tool, "handler": callable}
# Handlers are called as handler(engine, arguments).
tools = {
    search_tickets_tool.name:         {"tool": search_tickets_tool,         "handler": search_tickets},
    create_ticket_tool.name:          {"tool": create_ticket_tool,          "handler": create_ticket},
    assign_ticket_tool.name:          {"tool": assign_ticket_tool,          "handler": assign_ticket},
    update_ticket_status_tool.name:   {"tool": update_ticket_status_tool,   "handler": update_ticket_status},
    ticket_stats_tool.name:           {"tool": ticket_stats_tool,           "handler": ticket_stats},
    ticket_board_tool.name:           {"tool": ticket_board_tool,           "handler": ticket_board},
    get_user_profile_tool.name:       {"tool": get_user_profile_tool,       "handler": get_user_profile},
    update_profile_tool.name:         {"tool": update_profile_tool,         "handler": update_profile},
    list_users_tool.name:             {"tool": list_users_tool,             "handler": list_users},
    update_user_role_tool.name:       {"tool": update_user_role_tool,       "handler": update_user_role},
    invite_user_tool.name:            {"tool": invite_user_tool,            "handler": invite_user},
    user_ticket_stats_tool.name:      {"tool": user_ticket_stats_tool,      "handler": user_ticket_stats},
    list_categories_tool.name:        {"tool": list_categories_tool,        "handler": list_categories},
    create_category_tool.name:        {"tool": create_category_tool,        "handler": create_category},
    update_category_tool.name:        {"tool": update_category_tool,        "handler": update_category},
    toggle_category_active_tool.name: {"tool": toggle_category_active_tool, "handler": toggle_category_active},
}
