POLLS_URL = "/api/v1/polls"
POLL_URL = "/api/v1/polls/{event_id}"
POLL_ACTION_URL = "/api/v1/polls/{event_id}/{action}"
POLL_RENDER_REF_URL = "/api/v1/polls/{event_id}/render-ref"
SNAPSHOT_URL = "/api/v1/snapshot"
