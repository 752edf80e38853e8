from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Connection",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("user1", models.CharField(db_index=True, max_length=20)),
                ("user2", models.CharField(blank=True, db_index=True, max_length=20, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("waiting", "等待匹配"), ("active", "聊天中"), ("ended", "已结束")],
                        default="waiting",
                        max_length=20,
                    ),
                ),
                ("started_at", models.DateTimeField(auto_now_add=True)),
                ("expires_at", models.DateTimeField()),
            ],
            options={
                "db_table": "p2p_connection",
                "indexes": [models.Index(fields=["status", "expires_at"], name="p2p_conn_status_expires_idx")],
            },
        ),
        migrations.CreateModel(
            name="P2PMessage",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("connection_id", models.BigIntegerField(db_index=True)),
                ("sender", models.CharField(db_index=True, max_length=20)),
                ("message", models.TextField()),
                ("sent_at", models.DateTimeField(auto_now_add=True)),
                ("expires_at", models.DateTimeField()),
            ],
            options={
                "db_table": "p2p_message",
            },
        ),
    ]
