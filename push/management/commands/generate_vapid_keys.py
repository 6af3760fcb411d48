from django.core.management.base import BaseCommand

from push.vapid import generate_keypair


class Command(BaseCommand):
    help = "Generate a VAPID key pair (PEM for the server, base64url public key for the browser)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--env",
            action="store_true",
            help="Print as .env lines with escaped newlines.",
        )

    def handle(self, *args, **options):
        keys = generate_keypair()

        if options["env"]:
            self.stdout.write('VAPID_PRIVATE_PEM="%s"' % keys.private_pem.replace("\n", "\\n"))
            self.stdout.write('VAPID_PUBLIC_PEM="%s"' % keys.public_pem.replace("\n", "\\n"))
            self.stdout.write(f"VAPID_PUBLIC_KEY={keys.public_key}")
            return

        self.stdout.write("VAPID_PRIVATE_PEM:")
        self.stdout.write(keys.private_pem)
        self.stdout.write("VAPID_PUBLIC_PEM:")
        self.stdout.write(keys.public_pem)
        self.stdout.write("VAPID_PUBLIC_KEY:")
        self.stdout.write(keys.public_key)
