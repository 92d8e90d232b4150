"""Fixed reply, email and SMS templates for the AI Receptionist.

The same templates serve the remote server and the client's local fallback,
so a reply is word-for-word identical whichever path produced it.
"""

APPOINTMENT_RESPONSE = (
    "Perfect! I've scheduled your appointment for {day} at {time}. "
    "You'll receive a confirmation email shortly with all the details. "
    "Is there anything else I can help you with today?"
)

HOURS_RESPONSE = (
    "We're open Monday through Friday from 9:00 AM to 6:00 PM, and Saturdays "
    "from 10:00 AM to 4:00 PM. We're closed on Sundays. "
    "Is there a specific time you'd like to visit?"
)

CANCEL_RESPONSE = (
    "I can help you cancel your appointment. Could you please provide your "
    "name or appointment confirmation number so I can locate your booking?"
)

# Used when the caller's name is already known.
CANCEL_RESPONSE_NAMED = (
    "I can help you cancel your appointment, {name}. Could you please provide "
    "your appointment confirmation number so I can locate your booking?"
)

BILLING_RESPONSE = (
    "We accept most major insurance plans including Blue Cross Blue Shield, "
    "Aetna, Cigna, and UnitedHealthcare. We also offer flexible payment "
    "options. Would you like me to verify your specific insurance coverage?"
)

WAIT_TIME_RESPONSE = (
    "Current wait times are approximately 15-20 minutes for walk-ins. "
    "However, I'd be happy to schedule you an appointment to avoid any wait. "
    "What time works best for you?"
)

GENERAL_RESPONSE = (
    "Thank you for reaching out! I'd be happy to help you with that. "
    "Let me connect you with the right person who can assist you further. "
    "In the meantime, is there anything else I can help you with?"
)

# Last resort when neither the remote service nor the local engine answered.
APOLOGY_RESPONSE = (
    "I'm sorry, I'm experiencing technical difficulties. "
    "Please try again in a moment."
)

# ── Notifications ────────────────────────────────────────────────────

APPOINTMENT_CONFIRMATION_EMAIL = """
<h2>Appointment Confirmation</h2>
<p>Dear {customerName},</p>
<p>Your appointment has been confirmed for:</p>
<ul>
  <li><strong>Date:</strong> {appointmentDate}</li>
  <li><strong>Time:</strong> {appointmentTime}</li>
  <li><strong>Service:</strong> {service}</li>
</ul>
<p>If you need to reschedule or cancel, please contact us at least 24 hours in advance.</p>
<p>Thank you for choosing our services!</p>
"""

APPOINTMENT_CONFIRMATION_SMS = (
    "Appointment confirmed for {appointmentDate} at {appointmentTime}. "
    "Service: {service}. Reply STOP to opt out."
)
