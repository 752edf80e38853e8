from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ChatGroup",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("topic", models.CharField(max_length=50)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("creator", models.CharField(blank=True, db_index=True, max_length=20, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("expires_at", models.DateTimeField(db_index=True)),
                ("member_count", models.IntegerField(default=0)),
                ("message_count", models.IntegerField(default=0)),
            ],
            options={
                "db_table": "im_chat_group",
            },
        ),
        migrations.CreateModel(
            name="GroupMember",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("group_id", models.BigIntegerField()),
                ("username", models.CharField(db_index=True, max_length=20)),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "im_group_member",
                "unique_together": {("group_id", "username")},
            },
        ),
        migrations.CreateModel(
            name="GroupMessage",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("group_id", models.BigIntegerField(db_index=True)),
                ("sender", models.CharField(db_index=True, max_length=20)),
                ("message", models.TextField()),
                ("sent_at", models.DateTimeField(auto_now_add=True)),
                ("expires_at", models.DateTimeField()),
            ],
            options={
                "db_table": "im_group_message",
            },
        ),
    ]
