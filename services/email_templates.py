# app/services/email_templates.py
# Bundled templates, used when the email_templates table is empty or unreachable.

_FOOTER = """
    <p style="font-size: 12px; color: #6b7280; margin-top: 30px; text-align: center;">
      Coffee Morning Challenge &middot; Supporting young people in Ireland
    </p>
"""

DEFAULT_TEMPLATES = {
    "donation_receipt": {
        "subject": "Thank you for your donation to {{campaign_title}}",
        "html": """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #059669;">Thank you for your donation!</h1>
  <p>Dear {{donor_name}},</p>
  <p>
    Thank you for your generous donation of <strong>&euro;{{donation_amount}}</strong> to support
    <strong>{{campaign_title}}</strong> organized by {{organizer_name}}.
  </p>
  <div style="background: #f3f4f6; padding: 16px; border-radius: 8px;">
    <p><strong>Amount:</strong> &euro;{{donation_amount}}</p>
    <p><strong>Date:</strong> {{donation_date}}</p>
    <p><strong>Campaign:</strong> {{campaign_title}}</p>
    <p><strong>Reference:</strong> {{donation_id}}</p>
  </div>
  {{#if message}}<p style="font-style: italic;">"{{message}}"</p>{{/if}}
  <p><a href="{{campaign_url}}">View Campaign</a></p>
""" + _FOOTER + "</div>",
    },
    "campaign_approved": {
        "subject": "Your Coffee Morning campaign has been approved!",
        "html": """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #059669;">Your campaign is live!</h1>
  <p>Dear {{organizer_name}},</p>
  <p>
    Great news! Your Coffee Morning campaign <strong>"{{campaign_title}}"</strong> has been approved
    and is now visible to supporters.
  </p>
  <div style="background: #f3f4f6; padding: 16px; border-radius: 8px;">
    <p><strong>Title:</strong> {{campaign_title}}</p>
    <p><strong>Goal:</strong> &euro;{{goal_amount}}</p>
    <p><strong>Event Date:</strong> {{event_date}}</p>
    <p><strong>Location:</strong> {{event_location}}</p>
  </div>
  <p><a href="{{campaign_url}}">View Your Campaign</a> &middot; <a href="{{share_url}}">Share Campaign</a></p>
""" + _FOOTER + "</div>",
    },
    "campaign_rejected": {
        "subject": "Update on your Coffee Morning campaign: {{campaign_title}}",
        "html": """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <p>Dear {{organizer_name}},</p>
  <p>
    Thank you for registering <strong>"{{campaign_title}}"</strong>. Unfortunately we are unable
    to approve the campaign at this time.
  </p>
  {{#if reason}}<p><strong>Reason:</strong> {{reason}}</p>{{/if}}
  <p>If you have any questions please reply to this email.</p>
""" + _FOOTER + "</div>",
    },
    "pack_ordered": {
        "subject": "Your Coffee Morning Pack is on its way - {{campaign_title}}",
        "html": """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #059669;">Pack order confirmed</h1>
  <p>Dear {{organizer_name}},</p>
  <p>
    We have received your payment of <strong>&euro;{{pack_amount}}</strong> for the
    <strong>{{pack_name}}</strong> for <strong>"{{campaign_title}}"</strong>.
  </p>
  <p>Your campaign will go live once it has been reviewed by our team.</p>
  <p><strong>Order Reference:</strong> {{pack_order_id}}</p>
""" + _FOOTER + "</div>",
    },
    "pack_payment_link": {
        "subject": "Complete your Coffee Morning Pack order - {{campaign_title}}",
        "html": """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <p>Dear {{organizer_name}},</p>
  <p>
    Thank you for registering your Coffee Morning campaign <strong>"{{campaign_title}}"</strong>!
    To receive your pack please complete the postage payment.
  </p>
  <p style="text-align: center;">
    <a href="{{payment_link}}" style="background: #f59e0b; color: white; padding: 15px 30px;
       text-decoration: none; border-radius: 8px; font-weight: bold;">Complete Pack Order - &euro;{{pack_amount}}</a>
  </p>
  <p><strong>Order Reference:</strong> {{pack_order_id}}</p>
""" + _FOOTER + "</div>",
    },
}

TEMPLATE_VARIABLES = {
    "donation_receipt": ["donor_name", "donation_amount", "campaign_title", "organizer_name",
                         "donation_date", "donation_id", "campaign_url", "message"],
    "campaign_approved": ["organizer_name", "campaign_title", "goal_amount", "event_date",
                          "event_location", "campaign_url", "share_url"],
    "campaign_rejected": ["organizer_name", "campaign_title", "reason"],
    "pack_ordered": ["organizer_name", "campaign_title", "pack_name", "pack_amount", "pack_order_id"],
    "pack_payment_link": ["organizer_name", "campaign_title", "payment_link", "pack_amount", "pack_order_id"],
}
