from django.apps import apps


class BackgroundTasksMiddleware:
    """Makes sure the serving process runs the cache sweeper and rate refresher."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        apps.get_app_config('rates').start_background_tasks()
        return self.get_response(request)
