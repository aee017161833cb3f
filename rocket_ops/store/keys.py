# Collection keys shared by the services, the scheduler and the seed script
INVENTORY = "inventory"
PURCHASE_REQUESTS = "purchase-requests"
PURCHASE_LISTS = "purchase-lists"
VENDORS = "vendors"
PENDING_INVENTORY = "pending-inventory"
PROCESSED_PURCHASE_REQUESTS = "processed-purchase-requests"
TASKS = "tasks"
USERS = "users"
NOTIFICATIONS = "notifications"
SCHEDULER_STATE = "scheduler-state"
