import json

from django.contrib.contenttypes.models import ContentType
from django.core import serializers

from .models import Activity, SalesOrder, ThreadPurchase


def log_activity(user, action_type, instance, description=None):
    """Record an activity entry.

    A generic description is generated unless ``description`` is supplied.
    Deleted sales orders and thread purchases keep a JSON snapshot of their
    child rows so the audit trail shows what went away with them.
    """
    if description is None:
        description = f"{instance.__class__.__name__} {instance} was {action_type}."
    object_repr = ''

    if action_type == 'deleted':
        if isinstance(instance, SalesOrder):
            items_data = serializers.serialize('json', instance.items.all())
            order_data = serializers.serialize('json', [instance])
            object_repr = json.dumps({'sales_order': order_data, 'items': items_data})
        elif isinstance(instance, ThreadPurchase):
            dyeing_data = serializers.serialize('json', instance.dyeing_processes.all())
            purchase_data = serializers.serialize('json', [instance])
            object_repr = json.dumps({'thread_purchase': purchase_data, 'dyeing_processes': dyeing_data})
        else:
            object_repr = serializers.serialize('json', [instance])

    Activity.objects.create(
        user=user if getattr(user, 'is_authenticated', False) else None,
        action_type=action_type,
        description=description[:255],
        content_type=ContentType.objects.get_for_model(instance),
        object_id=instance.pk,
        object_repr=object_repr,
    )
