"""
Customer records module.

- Visibility and write checks come from the access policy, never from query filters
- Images and copywritings are immutable once created; only removal is allowed
- Every save refreshes last_tracked_date, which drives the follow-up badge
"""
