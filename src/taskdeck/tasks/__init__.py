"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Item, TaskStatus, TaskFormData)
- status_table.py: workflow transitions and named status actions
- task_filter.py / task_sorter.py / task_stats.py: pure view helpers
- task_operations.py: optimistic create/update/delete against the API
- task_api.py: httpx client for the remote task store
- list_poller.py: initiatives/projects/KPI lists refreshed in the background
"""
