import os

from app import create_app
from models import db, User, ContractTemplate
from services.documents import TemplateKind

DEFAULT_TEMPLATE = {
    "name": "Performance Agreement",
    "content_html": "\n".join([
        "<h2>{{project_title}}</h2>",
        "<p>This agreement is made between {{client_name}} ({{client_email}}, {{client_phone}}) "
        "and the performer for the event on {{wedding_date}} at {{venue}}.</p>",
        "<p>Package: {{package_type}}. The performance fee is {{performance_fee}}, "
        "half of which is due as a deposit on signing.</p>",
        "<p>{{signature_client}}</p>",
        "<p>{{signature_vendor}}</p>",
    ]),
}


def init_db():
    app = create_app()
    with app.app_context():
        # Create all tables
        db.create_all()

        username = os.getenv('VENDOR_USERNAME', 'vendor')
        if User.query.filter_by(username=username).first() is None:
            print(f"Creating vendor login '{username}'...")
            user = User(
                username=username,
                email=os.getenv('VENDOR_EMAIL', 'vendor@example.com'),
                first_name=os.getenv('VENDOR_FIRST_NAME', 'Aurora'),
                last_name=os.getenv('VENDOR_LAST_NAME', 'Sonnet'),
            )
            user.set_password(os.getenv('VENDOR_PASSWORD', 'change-me'))
            db.session.add(user)
        else:
            print(f"Vendor login '{username}' already exists!")

        if ContractTemplate.query.count() == 0:
            print(f"Adding template: {DEFAULT_TEMPLATE['name']}")
            db.session.add(ContractTemplate(kind=TemplateKind.EDITABLE_MARKUP.value, **DEFAULT_TEMPLATE))

        try:
            db.session.commit()
            print("Successfully initialized database!")
        except Exception as e:
            db.session.rollback()
            print(f"Error initializing database: {str(e)}")

        print("\nCurrent templates in database:")
        for template in ContractTemplate.query.order_by(ContractTemplate.id).all():
            print(f"{template.id}: {template.name} ({template.kind})")


if __name__ == '__main__':
    init_db()
