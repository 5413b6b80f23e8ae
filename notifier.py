import logging
if __name__=="__main__":
    logging.basicConfig(level=logging.DEBUG)

import time

import requests

import settings


class LogNotifier:
    """
        Alerts that only go to the log, used when no webhook is configured

        send() returns True if the alert was delivered. Notifications are best effort,
        a failure is logged and that's it - nothing ever retries or raises.
    """

    def send(self,title:str,message:str)->bool:
        logging.warning(f"NOTIFICATION: {title}: {message}")
        return True


class WebhookNotifier(LogNotifier):
    def __init__(self,url:str,timeout_s:float=settings.NOTIFY_TIMEOUT_S):
        self.url=url
        self.timeout_s=timeout_s

    def send(self,title:str,message:str)->bool:
        super().send(title,message)
        payload={"title":title,
                 "message":message,
                 "ts":int(time.time())}
        try:
            r=requests.post(self.url,json=payload,timeout=self.timeout_s)
        except requests.RequestException as e:
            logging.warning(f"Failed to send notification {title!r}: {e}")
            return False

        if not 200<=r.status_code<300:
            logging.warning(f"Failed to send notification {title!r}: webhook returned {r.status_code}")
            return False

        logging.info(f"Notification sent: {title}")
        return True


def from_settings()->LogNotifier:
    if settings.NOTIFY_WEBHOOK_URL:
        return WebhookNotifier(settings.NOTIFY_WEBHOOK_URL)
    return LogNotifier()



if __name__=="__main__":
    from_settings().send("Test","Test notification from the relay controller")
