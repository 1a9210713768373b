import pytest
from django.urls import reverse

from chat.models import Message


@pytest.mark.parametrize(
    "url_name",
    [
        "admin:assessment_assessment_changelist",
        "admin:assessment_project_changelist",
        "admin:chat_conversation_changelist",
        "admin:chat_message_changelist",
        "admin:chat_appliedupdate_changelist",
    ],
)
def test_changelists_render(admin_client, message, project, url_name):
    response = admin_client.get(reverse(url_name))
    assert response.status_code == 200


def test_conversation_list_shows_counts_and_links(admin_client, conversation, message_factory):
    message_factory(conversation=conversation)
    message_factory(conversation=conversation, role=Message.Role.ASSISTANT, metadata={"hasActionableInsights": True})

    response = admin_client.get(reverse("admin:chat_conversation_changelist"))

    content = response.content.decode()
    assert reverse("admin:assessment_assessment_change", args=[conversation.assessment_id]) in content
    assert '<td class="field-message_count">2</td>' in content


def test_conversation_change_page_lists_messages(admin_client, message):
    response = admin_client.get(reverse("admin:chat_conversation_change", args=[message.conversation_id]))

    assert response.status_code == 200
    assert message.content in response.content.decode()
