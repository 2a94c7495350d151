"""SQL for the response-count NOTIFY trigger.

Learn: The trigger and NotifyListener must agree on a channel. Both take
it from settings.notify_channel: the migration renders the function with
it, and main.py LISTENs on it. Changing LEAP_NOTIFY_CHANNEL therefore
means re-running the trigger migration against the new value.

Payload (what NotifyListener relays to the hub):

  {"event": "response:created", "companyId": ..., "surveyId": ...,
   "count": <new - old>, "timestamp": ...}
"""

RESPONSE_NOTIFY_FUNCTION = "notify_survey_response"
RESPONSE_NOTIFY_TRIGGER = "campaign_response_count_notify"


def _literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def response_notify_function(channel: str) -> str:
    """CREATE FUNCTION statement that pg_notify()s `channel`."""
    return f"""
        CREATE OR REPLACE FUNCTION {RESPONSE_NOTIFY_FUNCTION}()
        RETURNS TRIGGER AS $$
        BEGIN
            IF NEW.response_count IS DISTINCT FROM OLD.response_count THEN
                PERFORM pg_notify({_literal(channel)}, json_build_object(
                    'event', 'response:created',
                    'companyId', NEW.company_id,
                    'surveyId', NEW.id,
                    'count', COALESCE(NEW.response_count, 0) - COALESCE(OLD.response_count, 0),
                    'timestamp', COALESCE(NEW.last_updated, now())
                )::text);
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """


def response_notify_trigger() -> str:
    return f"""
        CREATE TRIGGER {RESPONSE_NOTIFY_TRIGGER}
            AFTER UPDATE OF response_count ON campaigns
            FOR EACH ROW
            EXECUTE FUNCTION {RESPONSE_NOTIFY_FUNCTION}();
    """
