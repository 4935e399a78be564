"""Record the application version at first migrate so a fresh schema counts as installed."""
from django.conf import settings
from django.db import migrations


def seed_version(apps, schema_editor):
    Option = apps.get_model("options", "Option")
    Option.objects.get_or_create(name="version", defaults={"value": settings.APP_VERSION})


class Migration(migrations.Migration):

    dependencies = [
        ("options", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_version, migrations.RunPython.noop),
    ]
